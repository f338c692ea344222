#!/usr/bin/python
import os
import math
import numpy as np
import ROOT

import digi_monitor
from digi_monitor import *
import counters
from counters import *
import segments
from segments import *


### default binning of the digi monitor elements, overridden by the [DIGI] histos entry
DIGI_HISTO_PARAMS = {
    "NumberOfDigisPerDetH"        : {"switch":1, "nbins":100, "xmin":-0.5, "xmax":99.5},
    "TotalNumberOfDigisPerLayerH" : {"switch":1, "nbins":100, "xmin":0.,   "xmax":50000.},
    "NumberOfHitDetsPerLayerH"    : {"switch":1, "nbins":100, "xmin":-0.5, "xmax":2000.5},
    "DigiOccupancyPH"             : {"switch":1, "nbins":100, "xmin":-0.0001, "xmax":0.005},
    "DigiOccupancySH"             : {"switch":1, "nbins":100, "xmin":-0.0001, "xmax":0.005},
    "EtaH"                        : {"switch":1, "nbins":45,  "xmin":-4.5, "xmax":4.5},
    "PositionOfDigisPH"           : {"switch":1, "nbins":960, "xmin":0.5,  "xmax":960.5, "nybins":32,  "ymin":0.5, "ymax":32.5},
    "PositionOfDigisSH"           : {"switch":1, "nbins":1016,"xmin":0.5,  "xmax":1016.5,"nybins":2,   "ymin":0.5, "ymax":2.5},
    "ClusterPositionPH"           : {"switch":1, "nbins":960, "xmin":0.5,  "xmax":960.5, "nybins":32,  "ymin":0.5, "ymax":32.5},
    "ClusterPositionSH"           : {"switch":1, "nbins":1016,"xmin":0.5,  "xmax":1016.5,"nybins":2,   "ymin":0.5, "ymax":2.5},
    "NumberOfClustersPerDetH"     : {"switch":1, "nbins":50,  "xmin":-0.5, "xmax":49.5},
    "ClusterWidthH"               : {"switch":1, "nbins":16,  "xmin":-0.5, "xmax":15.5},
    "DigiChargeH"                 : {"switch":1, "nbins":261, "xmin":-0.5, "xmax":260.5},
    "ChargeXYMapH"                : {"switch":1, "nbins":450, "xmin":0.5,  "xmax":450.5, "nybins":1350,"ymin":0.5, "ymax":1350.5},
    "XYPositionMapH"              : {"switch":1, "nbins":1250,"xmin":-1250.,"xmax":1250.,"nybins":1250,"ymin":-1250.,"ymax":1250.},
    "RZPositionMapH"              : {"switch":1, "nbins":3000,"xmin":-3000.,"xmax":3000.,"nybins":1250,"ymin":0.,    "ymax":1250.},
}

def digi_params(overrides=None):
    if(overrides is None): overrides = {}
    params = {}
    for name,par in DIGI_HISTO_PARAMS.items():
        p = dict(par)
        if(name in overrides): p.update(overrides[name])
        params.update( {name:p} )
    for name,par in overrides.items():
        if(name not in params): params.update( {name:dict(par)} )
    return params


def h1(name,title,par):
    return ROOT.TH1D(name,title,int(par["nbins"]),par["xmin"],par["xmax"])

def h2(name,title,parx,pary=None):
    if(pary is None): return ROOT.TH2D(name,title,int(parx["nbins"]),parx["xmin"],parx["xmax"], int(parx["nybins"]),parx["ymin"],parx["ymax"])
    return ROOT.TH2D(name,title,int(parx["nbins"]),parx["xmin"],parx["xmax"], int(pary["nbins"]),pary["xmin"],pary["xmax"])

def prof(name,title,parx,pary):
    return ROOT.TProfile(name,title,int(parx["nbins"]),parx["xmin"],parx["xmax"],pary["xmin"],pary["xmax"])


### book one monitor element of a layer
def book_layer_histo(name,params):
    if(name=="NumberOfDigisPerDet"):               return h1(name,";Number of digis per det;Dets",params["NumberOfDigisPerDetH"])
    if(name=="DigiOccupancyP"):                    return h1(name,";Digi occupancy (P);Dets",params["DigiOccupancyPH"])
    if(name=="DigiOccupancyVsEtaP"):               return prof(name,";#eta;Digi occupancy (P)",params["EtaH"],params["DigiOccupancyPH"])
    if(name=="PositionOfDigisP"):                  return h2(name,";Row;Column;Digis",params["PositionOfDigisPH"])
    if(name=="ClusterPositionP"):                  return h2(name,";Cluster position;Column;Clusters",params["ClusterPositionPH"])
    if(name=="ChargeXYMap"):                       return h2(name,";Column;Row;Charge",params["ChargeXYMapH"])
    if(name=="TotalNumberOfDigisPerLayer"):        return h1(name,";Number of digis per layer;Events",params["TotalNumberOfDigisPerLayerH"])
    if(name=="NumberOfHitDetectorsPerLayer"):      return h1(name,";Number of hit dets per layer;Events",params["NumberOfHitDetsPerLayerH"])
    if(name=="NumberOfClustersPerDet"):            return h1(name,";Number of clusters per det;Dets",params["NumberOfClustersPerDetH"])
    if(name=="ClusterWidth"):                      return h1(name,";Cluster width;Clusters",params["ClusterWidthH"])
    if(name=="DigiOccupancyS"):                    return h1(name,";Digi occupancy (S);Dets",params["DigiOccupancySH"])
    if(name=="DigiOccupancyVsEtaS"):               return prof(name,";#eta;Digi occupancy (S)",params["EtaH"],params["DigiOccupancySH"])
    if(name=="FractionOfOverThresholdDigis"):      return ROOT.TH1D(name,";Fraction of over-threshold digis;Dets",11,-0.05,1.05)
    if(name=="FractionOfOverThresholdDigisVsEta"): return prof(name,";#eta;Fraction of over-threshold digis",params["EtaH"],{"xmin":-0.05,"xmax":1.05})
    if(name=="ClusterPositionS"):                  return h2(name,";Cluster position;Column;Clusters",params["ClusterPositionSH"])
    if(name=="PositionOfDigisS"):                  return h2(name,";Row;Column;Digis",params["PositionOfDigisSH"])
    if(name=="ChargeOfDigis"):                     return h1(name,";Digi charge [ADC];Digis",params["DigiChargeH"])
    if(name=="ChargeOfDigisVsWidth"):              return h2(name,";Cluster charge [ADC];Cluster width;Clusters",params["DigiChargeH"],params["ClusterWidthH"])
    print(f"unknown monitor element {name}")
    return None


def book_digi_histos(tfo,elements,pixel,cluster_flag,top_folder,overrides=None):
    ### one LayerMEs per layer key, histograms live in top_folder/DigiMonitor/<key>
    params = digi_params(overrides)
    layer_mes = {}
    for element in elements:
        if(element.layer<0): continue
        key = get_histo_id(element.layer,element.ring,pixel)
        if(key in layer_mes): continue
        folder = f"{top_folder}/DigiMonitor/{key}"
        tfo.cd()
        if(not tfo.GetDirectory(folder)): tfo.mkdir(folder)
        tfo.cd(folder)
        histos = {}
        for name in layer_histo_names(pixel,element.layer,element.ring,cluster_flag,params):
            h = book_layer_histo(name,params)
            if(h is None): continue
            h.Sumw2()
            histos.update( {name:h} )
        layer_mes.update( {key:LayerMEs(key,histos)} )

    folder = f"{top_folder}/DigiMonitor"
    tfo.cd()
    if(not tfo.GetDirectory(folder)): tfo.mkdir(folder)
    tfo.cd(folder)
    global_mes = {}
    names = global_histo_names(params)
    if("DigiXPosVsYPos" in names):
        global_mes.update( {"DigiXPosVsYPos":h2("DigiXPosVsYPos",";x [mm];y [mm];Digis",params["XYPositionMapH"])} )
    if("DigiRPosVsZPos" in names):
        global_mes.update( {"DigiRPosVsZPos":h2("DigiRPosVsZPos",";z [mm];r [mm];Digis",params["RZPositionMapH"])} )
    if("OccupancyInXY" in names):
        par = params["XYPositionMapH"]
        occ = params["DigiOccupancyPH"]
        global_mes.update( {"OccupancyInXY":ROOT.TProfile2D("OccupancyInXY",";x [mm];y [mm];Occupancy",int(par["nbins"]),par["xmin"],par["xmax"],int(par["nybins"]),par["ymin"],par["ymax"],occ["xmin"],occ["xmax"])} )
    if("OccupancyInRZ" in names):
        par = params["RZPositionMapH"]
        occ = params["DigiOccupancyPH"]
        global_mes.update( {"OccupancyInRZ":ROOT.TProfile2D("OccupancyInRZ",";z [mm];r [mm];Occupancy",int(par["nbins"]),par["xmin"],par["xmax"],int(par["nybins"]),par["ymin"],par["ymax"],occ["xmin"],occ["xmax"])} )
    tfo.cd()
    return layer_mes,global_mes


#############################################
### trigger path summary

def book_trigger_histos(tfo,path,levels):
    histos = {}
    tfo.cd()
    d = tfo.GetDirectory(path)
    if(not d): d = tfo.mkdir(path,f"{path} HLT path")
    d.cd()
    nlevels = len(levels)
    histos.update( { "h_pass_counts"    : ROOT.TH1D("h_pass_counts",";;Events",nlevels,0,nlevels) } )
    histos.update( { "h_step_eff"       : ROOT.TH1D("h_step_eff",";;Step efficiency",nlevels,0,nlevels) } )
    histos.update( { "h_cumulative_eff" : ROOT.TH1D("h_cumulative_eff",";;Cumulative efficiency",nlevels,0,nlevels) } )
    for hname,hist in histos.items():
        for b in range(1,nlevels+1):
            hist.GetXaxis().SetBinLabel(b,levels[b-1].label)
        hist.SetLineColor(ROOT.kBlack)
    tfo.cd()
    return histos


def fill_trigger_histos(histos,report):
    for i,n in enumerate(report.pass_counts):
        histos["h_pass_counts"].SetBinContent(i+1,float(n))
        if(i==0): continue
        if(not np.isnan(report.step[i])):
            histos["h_step_eff"].SetBinContent(i+1,report.step[i])
            histos["h_step_eff"].SetBinError(i+1,0.5*(report.step_err[i][1]-report.step_err[i][0]))
        if(not np.isnan(report.cumulative[i])):
            histos["h_cumulative_eff"].SetBinContent(i+1,report.cumulative[i])
            histos["h_cumulative_eff"].SetBinError(i+1,0.5*(report.cumulative_err[i][1]-report.cumulative_err[i][0]))


#############################################
### jet-level plots along the trigger path

JET_BINS    = 100
VERTEX_BINS = 100

def book_jet_plots(tfo,path,levels,flavours=None,cuts=None,max_energy=300.,max_eta=5.):
    ### one JetPlots per level, histograms named h_<level>_<group>_<variable>
    tfo.cd()
    d = tfo.GetDirectory(path)
    if(not d): d = tfo.mkdir(path,f"{path} HLT path")
    d.cd()
    ranges = {"et":(0.,max_energy,"E_{T} [GeV]"), "eta":(-max_eta,max_eta,"#eta"), "phi":(-np.pi,np.pi,"#phi")}
    jet_plots = []
    for level in levels:
        plots = JetPlots(level.name,level.label,flavours,cuts)
        for key in plots.keys():
            var = key.split("_")[-1]
            xmin,xmax,xtitle = ranges[var]
            h = ROOT.TH1D(f"h_{level.name}_{key}",f"{level.label};{xtitle};Jets",JET_BINS,xmin,xmax)
            h.Sumw2()
            plots.histos.update( {key:h} )
        jet_plots.append(plots)
    tfo.cd()
    return jet_plots


def book_vertex_histos(tfo,path,max_r=0.1,max_z=15.):
    tfo.cd()
    d = tfo.GetDirectory(path)
    if(not d): d = tfo.mkdir(path,f"{path} HLT path")
    d.cd()
    histos = {}
    histos.update( { "vertex_x" : ROOT.TH1D("h_PrimaryVertex_x","Primary vertex;x [cm];Events",VERTEX_BINS,-max_r,max_r) } )
    histos.update( { "vertex_y" : ROOT.TH1D("h_PrimaryVertex_y","Primary vertex;y [cm];Events",VERTEX_BINS,-max_r,max_r) } )
    histos.update( { "vertex_z" : ROOT.TH1D("h_PrimaryVertex_z","Primary vertex;z [cm];Events",VERTEX_BINS,-max_z,max_z) } )
    tfo.cd()
    return histos


def jet_efficiency(num,den):
    ### binomial ratio of every histogram booked at both levels
    effs = {}
    for key,hnum in num.histos.items():
        hden = den.histos.get(key)
        if(hden is None): continue
        name = f"h_{num.name}_vs_{den.name}_{key}_eff"
        h = hnum.Clone(name)
        h.SetTitle(f"{num.title} vs {den.title}")
        h.GetYaxis().SetTitle("Efficiency")
        h.Divide(hnum,hden,1.,1.,"B")
        effs.update( {name:h} )
    return effs


def write_jet_efficiencies(tfo,path,jet_plots):
    ### step efficiencies (level i vs i-1) and cumulative ones (level i vs the first level)
    tfo.cd()
    d = tfo.GetDirectory(path)
    if(not d): d = tfo.mkdir(path,f"{path} HLT path")
    d.cd()
    effs = {}
    for i in range(1,len(jet_plots)):
        effs.update( jet_efficiency(jet_plots[i],jet_plots[i-1]) )
    for i in range(2,len(jet_plots)):
        effs.update( jet_efficiency(jet_plots[i],jet_plots[0]) )
    tfo.cd()
    return effs


#############################################
### muon segments

def book_segment_histos(tfo,folder="CSCSegments"):
    histos = {}
    tfo.cd()
    d = tfo.GetDirectory(folder)
    if(not d): d = tfo.mkdir(folder)
    d.cd()
    histos.update( { "h_chi2"     : ROOT.TH1F("h_chi2","chi2;#chi^{2}/N_{DoF};Segments",120,0,30) } )
    histos.update( { "h_rechits"  : ROOT.TH1I("h_rechits","nrechit;Rechits per segment;Segments",6,2,8) } )
    histos.update( { "h_segments" : ROOT.TH1I("h_segments","segments multiplicity;Segments per event;Events",20,0,20) } )
    histos.update( { "h_eta"      : ROOT.TH1F("h_eta","eta sim muons;#eta;Muons",50,-2.5,2.5) } )
    histos.update( { "h_pt"       : ROOT.TH1F("h_pt","pT sim muons;p_{T} [GeV];Muons",120,0,60) } )
    histos.update( { "h_dx"       : ROOT.TH1F("h_dx","deltaX;#Deltax [cm];Segments",400,-100,+100) } )
    histos.update( { "h_dy"       : ROOT.TH1F("h_dy","deltaY;#Deltay [cm];Segments",400,-100,+100) } )
    for i in range(4):
        histos.update( { f"h_reso_phi_{i}"   : ROOT.TH1F(f"h_reso_phi_{i}","reso phi;#Delta#phi;Segments",150,-0.23,0.23) } )
        histos.update( { f"h_reso_theta_{i}" : ROOT.TH1F(f"h_reso_theta_{i}","reso theta;#Delta#theta;Segments",150,-0.45,0.45) } )
    tfo.cd()
    return histos


def write_segment_efficiencies(tfo,reader,folder="CSCSegments"):
    ### chamber types on every second bin
    tfo.cd()
    d = tfo.GetDirectory(folder)
    if(not d): d = tfo.mkdir(folder)
    d.cd()
    types = reader.chamber_types()
    nbins = len(types)*2+2
    effs  = reader.efficiencies()
    heffs = {}
    for i,kind in enumerate(["found","found_rechits","good","good_rechits"]):
        h = ROOT.TH1F(f"h_eff_{kind}","efficiency",nbins,0,nbins)
        for ibin,typename in enumerate(types):
            b = (ibin+1)*2
            eff = effs[typename][kind]
            if(not np.isnan(eff)): h.SetBinContent(b,eff)
            h.GetXaxis().SetBinLabel(b,typename)
        heffs.update( {kind:h} )
    tfo.cd()
    return heffs
