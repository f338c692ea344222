#!/usr/bin/python
import os
import os.path
import math
import time
import numpy as np
import ROOT

import argparse
parser = argparse.ArgumentParser(description='analyzer.py...')
parser.add_argument('-conf', metavar='config file', required=True,  help='full path to config file')
argus = parser.parse_args()
configfile = argus.conf

import config
from config import *
### must be called here (first) and only once!
cfg = init_config(configfile,True)

import objects
from objects import *
import event_records
from event_records import *
import digi_monitor
from digi_monitor import *
import counters
from counters import *
import segments
from segments import *
import hists
from hists import *
import plots
from plots import *

ROOT.gErrorIgnoreLevel = ROOT.kError
ROOT.gROOT.SetBatch(1)


#####################################################################################
#####################################################################################
#####################################################################################

def GetElements(events):
    ### the detector elements seen in the input, used to book the layer histograms
    elements = {}
    for evt in events:
        for element,digis in get_all_digis(evt):
            if(element.rawid not in elements): elements.update( {element.rawid:element} )
    return list(elements.values())


def MakeTriggerCounter():
    levels = []
    for name,filt in cfg["levels"].items():
        levels.append( TriggerLevel(name,filt,name) )
    counter = TriggerChainCounter(cfg["triggerPath"],levels,cfg["verbose"],cfg["mcRadius"],cfg["offlineRadius"])
    if(not counter.cache_path_description(cfg["triggerPaths"],cfg["pathModules"])):
        print(f"unable to access trigger informations and description for path {cfg['triggerPath']}")
    return counter


def Run(events,tfo):
    monitor = None
    if(cfg["doDigi"]):
        layer_mes,global_mes = book_digi_histos(tfo,GetElements(events),cfg["pixelFlag"],cfg["clusterFlag"],cfg["topFolder"],cfg["histos"])
        monitor = DigiMonitor(make_policy(cfg["pixelFlag"]),layer_mes,global_mes,cfg["clusterFlag"],cfg["verbose"])

    counter = None
    trghistos = None
    if(cfg["doTrigger"]):
        counter = MakeTriggerCounter()
        trghistos = book_trigger_histos(tfo,counter.path,counter.levels)
        jet_plots = book_jet_plots(tfo,counter.path,counter.levels,cfg["mcFlavours"],cfg["offlineCuts"],cfg["jetMaxEnergy"],cfg["jetMaxEta"])
        counter.attach_plots(jet_plots,book_vertex_histos(tfo,counter.path,cfg["vertexMaxR"],cfg["vertexMaxZ"]))

    reader = None
    if(cfg["doSegment"]):
        reader = SegmentReader.from_config(cfg,book_segment_histos(tfo))

    nprocevents = 0
    nevents = len(events)
    for ientry,evt in enumerate(events):
        if(cfg["nmax2process"]>0 and nprocevents>=cfg["nmax2process"]): break
        if(cfg["nprintout"]>0 and nprocevents%cfg["nprintout"]==0 and nprocevents>0): print(f"processed event:{nprocevents} out of {nevents} events")
        nprocevents += 1

        if(monitor is not None):
            monitor.analyze(get_all_digis(evt))

        if(counter is not None and counter.path_cached):
            result = get_trigger_result(evt)
            if(result is None): print(f"no trigger results in event {ientry}")
            else:               counter.analyze(result)

        if(reader is not None):
            records = get_csc_records(evt)
            if(records is not None): reader.analyze(*records)

    #######################
    ### post processing ###
    #######################
    basename = cfg["outputfile"].replace(".root","")
    if(counter is not None):
        report = counter.report()
        counter.print_report()
        fill_trigger_histos(trghistos,report)
        write_jet_efficiencies(tfo,counter.path,counter.jet_plots)
        if(cfg["doplots"]):
            fig,ax = plot_trigger_efficiencies(counter.path,counter.levels,report,f"{basename}_{counter.path}_efficiency.pdf")
            fig,ax = plot_pass_counts(counter.path,counter.levels,report,f"{basename}_{counter.path}_counts.pdf")
    if(reader is not None):
        reader.print_report()
        write_segment_efficiencies(tfo,reader)
        if(cfg["doplots"]):
            fig,ax = plot_segment_efficiencies(reader,f"{basename}_segment_efficiency.pdf")
    return nprocevents


#############################################################################
#############################################################################
#############################################################################

if __name__ == "__main__":
    ### get the start time
    st = time.time()

    events = []
    for fname in cfg["inputfiles"]:
        print("Running on:",fname)
        events.extend( load_events(fname) )
    print(f"Events in input: {len(events)}")
    if(cfg["nmax2process"]>0): print("Will process only",cfg["nmax2process"],"events")

    tfo = ROOT.TFile(cfg["outputfile"],"RECREATE")
    tfo.cd()
    nprocevents = Run(events,tfo)
    tfo.cd()
    tfo.Write()
    tfo.Close()
    print(f"Processed {nprocevents} events, histograms written to {cfg['outputfile']}")

    ### get the end time and the execution time
    et = time.time()
    elapsed_time = et - st
    print('Execution time:', elapsed_time, 'seconds')
